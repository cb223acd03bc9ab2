"""Business logic services.

Services own validation, persistence, and calls to the media provider.
Routes call exactly one service function per request.
"""
