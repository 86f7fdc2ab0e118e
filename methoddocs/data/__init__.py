"""Bundled data files"""
