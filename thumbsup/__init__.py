"""ThumbsUp submission insights: content analysis, client summaries and approval prediction."""

__version__ = "0.1.0"
