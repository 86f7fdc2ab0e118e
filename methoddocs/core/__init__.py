"""Core domain: Method records, validation and the error taxonomy"""
