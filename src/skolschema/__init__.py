"""skolschema -- Skola24 school timetables from the command line.

This package talks to the Skola24 timetable web service: it resolves
domains, schools and classes, fetches rendered timetables, caches raw
responses on disk, unwraps the service's success/failure response envelope
into typed models, and renders timetables as SVG.

Typical usage::

    skolschema schools example.skola24.se
    skolschema next example.skola24.se "Norra skolan" 7A
    skolschema svg example.skola24.se "Norra skolan" 7A -o monday.svg --day 1

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    envelope: Decoding and unwrapping of the response envelope.
    service: Domain queries with date-rotated cache keys.
    lessons: Lesson/box enrichment and the current/next lesson summary.
    render: SVG rendering of timetable schemas.
    config: XDG-aware configuration.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
