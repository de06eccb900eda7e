"""HTTP entry point for scenestitch."""
