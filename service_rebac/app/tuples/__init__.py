"""
Tuple models and codec.

- models: TupleKey, read filters and store descriptors (wire format).
- codec: Constructors and parsers for every user/object string.
"""
