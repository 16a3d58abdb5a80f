# Copyright (c) Syntropy Systems
"""Pydantic models for evalboard."""
