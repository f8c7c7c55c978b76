"""The operations (controllers) that handle the parsed requests."""
