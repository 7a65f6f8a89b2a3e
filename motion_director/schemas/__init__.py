"""Argument schemas for director tools"""
