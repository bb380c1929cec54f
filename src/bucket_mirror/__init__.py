"""bucket-mirror - keep an object storage bucket in step with a Dropbox tree."""

__version__ = "0.1.0"
