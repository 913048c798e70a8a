"""Object storage service package backed by S3."""
