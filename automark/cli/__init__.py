"""Command-line interface for automark"""
