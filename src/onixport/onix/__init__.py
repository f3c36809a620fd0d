"""ONIX codecs: version detection, decoding, parsing, mapping, building and validation.

Submodules are imported directly (``onixport.onix.parsers``,
``onixport.onix.builder``...); nothing is re-exported here so that
``onixport.env_settings`` can import the codelists without pulling in the
whole pipeline.
"""
