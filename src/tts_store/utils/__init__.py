"""
Utility Modules for tts-store.

    - timeit.py: Per-stage timing for request logging
"""
