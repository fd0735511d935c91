"""Use-case / operations layer.

Headless helpers invoked by the UI/backend: reading dropped, picked or pasted
images and writing exported results.
"""
