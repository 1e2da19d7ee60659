"""
HTTP API for the transaction tagger.
"""
