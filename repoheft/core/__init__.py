"""Core scanning engine, configuration and data model"""
