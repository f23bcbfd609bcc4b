"""Services layer - the visit logging pipeline and its collaborators."""
