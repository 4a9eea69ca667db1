"""Core investigation logic"""
