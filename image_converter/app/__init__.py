"""Application facade and state objects.

- Single command entry: backend.dispatch(cmd, payload)
- UI binding via state QObjects (backend.converter / backend.viewer / backend.slider)
- Python→view notifications via backend.event
- Display locators for original/converted blobs (resources)
"""
