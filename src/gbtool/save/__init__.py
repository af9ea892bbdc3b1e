"""Saving videos, images and metadata to templated filenames."""
