"""Command line interface for clusteriam."""
