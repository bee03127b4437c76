"""Application workflows orchestrating domain, receipt and runtime layers."""
