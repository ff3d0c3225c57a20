"""
Stackwork Test Suite

Unit tests for the custom resource state machine, the AWS adapters, the
deployment pipelines, and the webhook and CLI surfaces.
"""
