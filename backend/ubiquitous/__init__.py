"""
Ubiquitous Language System: a glossary service for domain-driven design teams
"""
__version__ = "0.1.0"
