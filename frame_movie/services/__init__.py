"""
Services Package for Frame Movie.

- `MovieSession` (movie_session.py): stages frames and runs the export.
- `ExportLog` / `ErrorLog` (logging_service.py): YAML export reports and
  plain text failure records, separate from the console logging.
"""
