"""Core configuration, models and workflow for the director agent"""
