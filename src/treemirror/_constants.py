"""Internal constants shared across the library."""

USER_AGENT = "treemirror/1"

#: Suffix appended to the database URL to address the tree root.
ROOT_RESOURCE = "/.json"

#: Maximum body length echoed back in transport error messages.
ERROR_BODY_PREVIEW = 200
