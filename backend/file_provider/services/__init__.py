"""
Services
========
Storage and image services.
"""
