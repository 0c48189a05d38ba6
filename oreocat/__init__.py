"""File uploads to object storage with signed URLs."""
