"""
Compute engines. DataFrames in, DataFrames out, no file I/O.

    registry / features   Feature-set discovery and per-series engines
    extraction            Observations -> long features table
    quality               good / nan / inf / -inf classification
    normalization         Per-feature normalisation
    matrix                Wide matrix and hierarchical ordering
    projection            PCA / t-SNE
    classification        Multi-feature classifiers with null testing
    top_features          Univariate feature ranking
"""
