"""Infrastructure layer: event plumbing, codecs, store adapters."""
