"""Command line interface for the Gradle 9 migration linter"""
