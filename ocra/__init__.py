"""OCRA: One Cookbook to Rule them All."""
