"""Server side of the pipeline: the chain boundary, error mapping, and the ASGI adapter."""
