"""Procurement approval workflows: graph validation, matching and path computation"""
