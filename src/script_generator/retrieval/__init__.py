"""Evidence retrieval: page fetching, image inlining, PDF conversion and Q&A search."""
