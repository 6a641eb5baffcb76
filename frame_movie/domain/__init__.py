"""
The domain layer of Frame Movie.

Modules:
    exceptions.py: The exception hierarchy raised by sessions and the pipeline.
    frame_store.py: `TemporaryFrameStore`, the unique naming and removal of
                    staged frame files.
    video_format.py: The catalog of MP4 quality tiers and the encoder
                     arguments each one produces.
    media.py: `MovieFile`, a finished movie described by ffprobe.
"""
