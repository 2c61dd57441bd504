"""Routing — per-method route table with first-registered-wins matching.

Routes are registered during setup and the table is frozen when the app
serves its first request.
"""
