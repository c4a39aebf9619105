"""Syllabus import: PDF text extraction, model parsing and datastore writes."""
