"""S3 bucket and object operations."""
