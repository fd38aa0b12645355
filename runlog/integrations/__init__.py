"""Integrations: remote sharing service, exporters and the terminal selector"""
