"""Grid engine: sanitizer, model, aggregation, navigation and scroll sync."""
