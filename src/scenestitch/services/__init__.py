"""Pipeline services: segmentation, media resolution, speech, rendering, storage."""
