"""End-to-end scenario tests for the headless content middleware.

This package contains scenario tests that run the middleware inside a real
ASGI application. Each scenario covers one user-visible flow: published
queries, webhooks, preview sessions and client-side refetch.
"""
