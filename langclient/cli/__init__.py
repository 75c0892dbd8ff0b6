"""
Command line interface for langclient.
"""
