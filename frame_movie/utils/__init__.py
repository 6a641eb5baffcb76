"""
Utility modules: running the encoder process (ffmpeg_utils.py), finding the
encoder executable (encoder_locator.py) and formatting sizes and durations
for logs (format_utils.py).
"""
