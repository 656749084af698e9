"""iacgraph — compile service graphs into Terraform."""

__version__ = "0.1.0"
