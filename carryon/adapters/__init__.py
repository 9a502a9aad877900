"""
CarryOn Adapters Package

Infrastructure around the core: classifier output parsing and persistence.
"""
