"""
HTTP API - FastAPI app exposing wallet snapshots, leaderboard and cache admin.
"""
