"""
Backend Scripts Module

Available scripts:
    - seed_data.py: Creates and publishes a sample approval workflow
    - validate_workflow.py: Validates a stored or exported workflow and dry runs it

Usage:
    python -m scripts.seed_data --company C1 --user U1
"""
