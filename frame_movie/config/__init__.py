"""
Configuration Package for Frame Movie.

This package centralizes the static configuration settings for the exporter.
Keeping configuration apart from the session and pipeline code makes it easy
to adjust paths and encoder parameters without touching the core logic.

This package includes settings for:
- Locations searched for the external encoder (FFmpeg), including the
  user-overridable install root from `config.user.yaml`.
- Naming of staged frame files and the temporary directory they live in.
- Logging format and the file names of export reports and error logs.
- The video quality tiers offered by the format catalog.
"""
