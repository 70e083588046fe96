"""Top-level package for Django configuration.

This package exposes the configuration of the FindoTrip availability and
pricing engine. It contains the settings modules for the different
environments.
"""
