"""MCP tool registrations for the collection uploader"""
