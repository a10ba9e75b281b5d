"""
Shared service utilities.

- http.py      - requests session factory and the single-attempt image session
"""
