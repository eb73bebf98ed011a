"""
Topic Modeling Constants and Configuration

This module defines constants for collapsed-Gibbs LDA topic modeling
of clinical transcriptions.
"""

# ===========================
# Module Version
# ===========================
TOPIC_MODELING_MODULE_VERSION = "0.1.0"

# ===========================
# Default LDA Parameters
# ===========================
DEFAULT_NUM_TOPICS = 10
"""Default number of topics (K is chosen by the caller, never automatically)"""

DEFAULT_ALPHA = 0.1
"""Symmetric Dirichlet prior on document-topic distributions"""

DEFAULT_ETA = 0.01
"""Symmetric Dirichlet prior on topic-term distributions"""

DEFAULT_ITERATIONS = 500
"""Fixed number of Gibbs sweeps; there is no automatic stopping rule"""

# ===========================
# Diagnostics
# ===========================
DEFAULT_CONVERGENCE_WINDOW = 10
"""Sweeps per window when comparing log-likelihood means"""

DEFAULT_CONVERGENCE_TOLERANCE = 1e-3
"""Maximum relative change between the last two windows"""

LOG_EVERY_N_SWEEPS = 50
"""Interval for INFO progress messages during training"""

PROBABILITY_TOLERANCE = 1e-6
"""Allowed deviation of beta/gamma row sums from 1"""

# ===========================
# Model Persistence
# ===========================
TOPIC_MODEL_FILENAME = "topic_model.json"
"""Filename for the model artifact (header, vocabulary, beta, gamma)"""

MODEL_INFO_FILENAME = "model_info.json"
"""Filename for training metadata"""

CHECKPOINT_FILENAME = "_sampler_checkpoint.json"
"""Default filename for sampler checkpoints written on NumericError"""

# ===========================
# Feature Engineering
# ===========================
DEFAULT_TOP_WORDS = 10
"""Default number of top terms per topic"""

DOMINANT_TOPIC_THRESHOLD = 0.25
"""Minimum probability to count a topic as significant for a document"""
