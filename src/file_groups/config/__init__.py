"""
Configuration management for File Groups.

Contains the Pydantic settings (MongoDB connection, bucket and collection
names, upload strictness) and the logging setup.
"""
