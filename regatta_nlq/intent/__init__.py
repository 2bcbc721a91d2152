"""Intent classification and sanitization.

The intent layer turns an English free-text question about regatta results into a validated
`QueryIntent`, which is sanitized and then used to build deterministic, parameterized SQL.
"""
