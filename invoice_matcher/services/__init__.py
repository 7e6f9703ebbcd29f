"""
Services
"""
