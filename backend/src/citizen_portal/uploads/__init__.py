"""Serving of locally stored attachments"""
