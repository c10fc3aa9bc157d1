"""flowpieces: polling triggers and the API request writer."""

__version__ = "0.1.0"
