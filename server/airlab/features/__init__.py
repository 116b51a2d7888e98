"""
Функциональные модули API.
"""
