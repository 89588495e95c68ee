"""Core paging logic: queries, paging sources, settings and exceptions."""
