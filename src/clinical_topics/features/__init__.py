"""Feature extraction: document-term matrices, TF-IDF and LDA topic modeling."""
