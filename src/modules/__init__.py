"""Business modules for the LocalRAG sidecar.

Each module keeps its own schemas, service and routes; infrastructure
clients are passed in from the application state.
"""
