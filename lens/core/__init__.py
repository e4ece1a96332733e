"""Shared configuration, logging, errors and models."""
