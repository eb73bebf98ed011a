"""
LDA Model Training Utilities

This module provides utilities for training and managing collapsed-Gibbs
LDA topic models on clinical transcriptions.

Usage:
    from clinical_topics.features.topic_modeling.lda_trainer import LDATrainer

    # Train a new model
    trainer = LDATrainer(num_topics=8, alpha=0.1, eta=0.01, iterations=500)
    model = trainer.train(dtm)
    trainer.save("models/lda_clinical")

    # Load existing model
    trainer = LDATrainer.load("models/lda_clinical")
"""

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np

from clinical_topics.config import settings
from clinical_topics.exceptions import ConfigError, NumericError, VocabularyError
from clinical_topics.features.document_term import DocumentTermMatrix
from clinical_topics.preprocessing.models import ProcessedCorpus
from clinical_topics.utils.checkpoint import CheckpointManager
from .constants import (
    CHECKPOINT_FILENAME,
    LOG_EVERY_N_SWEEPS,
    MODEL_INFO_FILENAME,
    TOPIC_MODEL_FILENAME,
)
from .evaluation import (
    check_convergence,
    collapsed_log_likelihood,
    perplexity,
    umass_coherence,
)
from .gibbs import ApproximateParallelSampler, CollapsedGibbsSampler
from .schemas import LDAModelInfo, ModelArtifact, TopicModel

logger = logging.getLogger(__name__)


def _is_positive_number(value) -> bool:
    return (
        isinstance(value, (int, float, np.integer, np.floating))
        and not isinstance(value, bool)
        and bool(np.isfinite(value))
        and value > 0
    )


def _is_positive_int(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool) and value > 0


class LDATrainer:
    """
    LDA Topic Model Trainer for clinical documents.

    This class handles:
    1. Validating hyperparameters (before any token is read)
    2. Running the collapsed Gibbs sampler over a document-term matrix
    3. Estimating topic-term (beta) and document-topic (gamma) distributions
    4. Optional diagnostics (log-likelihood trace, perplexity, coherence)
    5. Saving/loading trained models

    Usage:
        # Train new model
        trainer = LDATrainer(num_topics=8)
        model = trainer.train(dtm)

        # Load existing model
        trainer = LDATrainer.load("models/lda_clinical")
        model = trainer.topic_model
    """

    # pylint: disable=no-member
    def __init__(
        self,
        num_topics: Optional[int] = None,
        alpha: Optional[float] = None,
        eta: Optional[float] = None,
        iterations: Optional[int] = None,
        random_state: Optional[int] = None,
        num_workers: Optional[int] = None,
        compute_log_likelihood: Optional[bool] = None,
        convergence_window: Optional[int] = None,
        convergence_tolerance: Optional[float] = None,
        compute_coherence: Optional[bool] = None,
        checkpoint_path: Optional[Path | str] = None,
    ):
        """
        Initialize LDA trainer.

        Args:
            num_topics: Number of topics K (> 0)
            alpha: Document-topic Dirichlet prior (> 0)
            eta: Topic-term Dirichlet prior (> 0)
            iterations: Fixed number of Gibbs sweeps T (> 0)
            random_state: Seed of the sampler's generator
            num_workers: 1 = exact sequential sampler, >1 = approximate sharded sampler
            compute_log_likelihood: Record the log-likelihood after every sweep
            convergence_window: Sweeps per window for the convergence check
            convergence_tolerance: Relative change allowed between the last two windows
            compute_coherence: Compute u_mass coherence after training
            checkpoint_path: Where to write the sampler state on NumericError
                (a .json file, or a directory that receives _sampler_checkpoint.json)

        All arguments default to settings.topic_modeling.

        Raises:
            ConfigError: On any invalid hyperparameter
        """
        model_cfg = settings.topic_modeling.model
        eval_cfg = settings.topic_modeling.evaluation
        persist_cfg = settings.topic_modeling.persistence

        self.num_topics = num_topics if num_topics is not None else model_cfg.num_topics
        self.alpha = alpha if alpha is not None else model_cfg.alpha
        self.eta = eta if eta is not None else model_cfg.eta
        self.iterations = iterations if iterations is not None else model_cfg.iterations
        self.random_state = random_state if random_state is not None else model_cfg.random_state
        self.num_workers = num_workers if num_workers is not None else model_cfg.num_workers
        self.compute_log_likelihood = (
            compute_log_likelihood if compute_log_likelihood is not None
            else eval_cfg.compute_log_likelihood
        )
        self.convergence_window = (
            convergence_window if convergence_window is not None
            else eval_cfg.convergence_window
        )
        self.convergence_tolerance = (
            convergence_tolerance if convergence_tolerance is not None
            else eval_cfg.convergence_tolerance
        )
        self.compute_coherence = (
            compute_coherence if compute_coherence is not None
            else eval_cfg.compute_coherence
        )
        self.num_topic_words = eval_cfg.num_topic_words
        self.coherence_top_n = eval_cfg.coherence_top_n
        checkpoint_path = checkpoint_path if checkpoint_path is not None else persist_cfg.checkpoint_path
        self.checkpoint_path = Path(checkpoint_path) if checkpoint_path else None

        self._validate_config()

        # Model components (set by train() or load())
        self.topic_model: Optional[TopicModel] = None
        self.model_info: Optional[LDAModelInfo] = None

        logger.info(
            f"Initialized LDATrainer with {self.num_topics} topics, "
            f"alpha={self.alpha}, eta={self.eta}, {self.iterations} iterations"
        )
    # pylint: enable=no-member

    def _validate_config(self) -> None:
        """Reject invalid hyperparameters before any sampling."""
        if not _is_positive_int(self.num_topics):
            raise ConfigError(f"num_topics must be a positive integer, got {self.num_topics!r}")
        if not _is_positive_number(self.alpha):
            raise ConfigError(f"alpha must be > 0, got {self.alpha!r}")
        if not _is_positive_number(self.eta):
            raise ConfigError(f"eta must be > 0, got {self.eta!r}")
        if not _is_positive_int(self.iterations):
            raise ConfigError(f"iterations must be a positive integer, got {self.iterations!r}")
        if not _is_positive_int(self.num_workers):
            raise ConfigError(f"num_workers must be a positive integer, got {self.num_workers!r}")
        if isinstance(self.random_state, bool) or not isinstance(self.random_state, (int, np.integer)) \
                or self.random_state < 0:
            raise ConfigError(f"random_state must be a non-negative integer, got {self.random_state!r}")
        if not _is_positive_int(self.convergence_window):
            raise ConfigError(f"convergence_window must be a positive integer, got {self.convergence_window!r}")
        if not _is_positive_number(self.convergence_tolerance):
            raise ConfigError(f"convergence_tolerance must be > 0, got {self.convergence_tolerance!r}")

    def train(
        self,
        dtm: DocumentTermMatrix,
        stop_event: Optional[threading.Event] = None,
    ) -> TopicModel:
        """
        Fit LDA on a document-term matrix.

        Args:
            dtm: Document-term matrix (N documents x V terms)
            stop_event: Optional event; when set, training stops at the next
                sweep boundary (the in-flight sweep completes)

        Returns:
            TopicModel (also stored on self.topic_model)

        Raises:
            VocabularyError: If the corpus has no documents or no terms
            NumericError: If sampling produces an invalid probability
        """
        if dtm.num_documents == 0:
            raise VocabularyError("Cannot train LDA on zero documents")
        if dtm.num_terms == 0:
            raise VocabularyError("Cannot train LDA on an empty vocabulary")

        warnings_list: List[str] = []
        empty_documents = dtm.empty_documents()
        if empty_documents:
            message = (
                f"{len(empty_documents)} documents have no tokens; "
                f"they are excluded from sampling and get a uniform topic distribution"
            )
            logger.warning(message)
            warnings_list.append(message)

        sampler = self._create_sampler(dtm)
        logger.info(
            f"Training LDA ({sampler.name}) with {self.num_topics} topics on "
            f"{dtm.num_documents} documents, {dtm.num_terms} terms, {sampler.num_tokens} tokens..."
        )

        sampler.initialize()
        log_likelihoods: List[float] = []
        stopped_early = False

        try:
            for sweep in range(1, self.iterations + 1):
                if stop_event is not None and stop_event.is_set():
                    stopped_early = True
                    logger.info(f"Stop requested; ending training after {sampler.sweeps_completed} sweeps")
                    break

                sampler.sweep()

                if self.compute_log_likelihood:
                    ll = collapsed_log_likelihood(
                        sampler.n_doc_topic, sampler.n_topic_term, sampler.alpha, sampler.eta
                    )
                    log_likelihoods.append(ll)
                    logger.debug(f"Sweep {sweep}: log-likelihood {ll:.4f}")

                if sweep % LOG_EVERY_N_SWEEPS == 0:
                    logger.info(f"Completed {sweep}/{self.iterations} sweeps")
        except NumericError as e:
            logger.error(f"Sampling aborted: {e}")
            self._write_checkpoint(e)
            raise

        logger.info("LDA training complete!")

        topic_model = TopicModel(
            num_topics=self.num_topics,
            vocabulary_size=dtm.num_terms,
            num_documents=dtm.num_documents,
            alpha=float(self.alpha),
            eta=float(self.eta),
            seed=int(self.random_state),
            iterations=sampler.sweeps_completed,
            vocabulary=dtm.vocabulary,
            document_ids=dtm.document_ids,
            beta=sampler.estimate_beta(),
            gamma=sampler.estimate_gamma(),
        )

        # Diagnostics
        model_perplexity = None
        if log_likelihoods:
            model_perplexity = perplexity(log_likelihoods[-1], sampler.num_tokens)
            logger.info(f"Final log-likelihood: {log_likelihoods[-1]:.4f}")
            message = check_convergence(
                log_likelihoods, self.convergence_window, self.convergence_tolerance
            )
            if message:
                warnings_list.append(message)

        topic_top_words = {
            topic_id: self._top_words(topic_model, topic_id, self.num_topic_words)
            for topic_id in range(self.num_topics)
        }

        coherence_score = None
        if self.compute_coherence:
            logger.info("Computing coherence score...")
            coherence_score = umass_coherence(
                dtm,
                [
                    [term for term, _ in topic_top_words[topic_id][:self.coherence_top_n]]
                    for topic_id in range(self.num_topics)
                ],
            )
            logger.info(f"Coherence score: {coherence_score:.4f}")

        self.topic_model = topic_model
        self.model_info = LDAModelInfo(
            num_topics=self.num_topics,
            num_documents=dtm.num_documents,
            vocabulary_size=dtm.num_terms,
            num_tokens=sampler.num_tokens,
            iterations=self.iterations,
            iterations_completed=sampler.sweeps_completed,
            alpha=float(self.alpha),
            eta=float(self.eta),
            random_state=int(self.random_state),
            sampler=sampler.name,
            num_workers=self.num_workers,
            stopped_early=stopped_early,
            log_likelihoods=log_likelihoods,
            perplexity=model_perplexity,
            coherence_score=coherence_score,
            topic_top_words=topic_top_words,
            empty_documents=list(empty_documents),
            warnings=warnings_list,
            vocabulary_fingerprint=dtm.vocabulary.fingerprint,
            training_date=datetime.now().isoformat(),
        )
        return topic_model

    def train_corpus(
        self,
        corpus: ProcessedCorpus,
        stop_event: Optional[threading.Event] = None,
    ) -> TopicModel:
        """Build the document-term matrix of a processed corpus and train on it."""
        return self.train(DocumentTermMatrix.from_corpus(corpus), stop_event=stop_event)

    def _create_sampler(self, dtm: DocumentTermMatrix) -> CollapsedGibbsSampler:
        if self.num_workers > 1:
            logger.info(
                f"Using approximate parallel sampler with {self.num_workers} workers "
                f"(not bit-identical to the sequential sampler)"
            )
            return ApproximateParallelSampler(
                dtm, self.num_topics, self.alpha, self.eta, self.random_state, self.num_workers
            )
        return CollapsedGibbsSampler(dtm, self.num_topics, self.alpha, self.eta, self.random_state)

    def _write_checkpoint(self, error: NumericError) -> None:
        if self.checkpoint_path is None or error.checkpoint is None:
            return
        target = self.checkpoint_path
        if target.suffix != ".json":
            target = target / CHECKPOINT_FILENAME
        path = CheckpointManager(target).save(
            error.checkpoint.to_dict(), reason=str(error)
        )
        logger.error(f"Saved last valid sampler checkpoint to {path}")

    @staticmethod
    def _top_words(model: TopicModel, topic_id: int, n: int) -> List[Tuple[str, float]]:
        row = model.beta[topic_id]
        order = sorted(range(model.vocabulary_size), key=lambda j: (-row[j], model.vocabulary.term_at(j)))
        return [(model.vocabulary.term_at(j), float(row[j])) for j in order[:n]]

    def save(self, save_path: Optional[Path | str] = None) -> None:
        """
        Save trained model to disk.

        Args:
            save_path: Directory to save model files
                (default: settings.topic_modeling.persistence.default_model_path)
        """
        if self.topic_model is None:
            raise ValueError("No trained model to save. Train a model first.")

        if save_path is None:
            save_path = settings.topic_modeling.persistence.default_model_path  # pylint: disable=no-member
        save_path = Path(save_path)
        save_path.mkdir(parents=True, exist_ok=True)

        # Save model artifact
        model_path = save_path / TOPIC_MODEL_FILENAME
        with open(model_path, 'w', encoding='utf-8') as f:
            f.write(self.topic_model.to_artifact().model_dump_json(indent=2))
        logger.info(f"Saved topic model to {model_path}")

        # Save model info
        if self.model_info:
            info_path = save_path / MODEL_INFO_FILENAME
            with open(info_path, 'w', encoding='utf-8') as f:
                json.dump(self.model_info.model_dump(mode='json'), f, indent=2, default=str)
            logger.info(f"Saved model info to {info_path}")

    @classmethod
    def load(cls, load_path: Optional[Path | str] = None) -> "LDATrainer":
        """
        Load trained model from disk.

        Args:
            load_path: Directory containing saved model files
                (default: settings.topic_modeling.persistence.default_model_path)

        Returns:
            LDATrainer instance with loaded model
        """
        if load_path is None:
            load_path = settings.topic_modeling.persistence.default_model_path  # pylint: disable=no-member
        load_path = Path(load_path)

        if not load_path.exists():
            raise FileNotFoundError(f"Model directory not found: {load_path}")

        model_path = load_path / TOPIC_MODEL_FILENAME
        with open(model_path, 'r', encoding='utf-8') as f:
            artifact = ModelArtifact.model_validate_json(f.read())
        topic_model = TopicModel.from_artifact(artifact)
        logger.info(f"Loaded topic model from {model_path}")

        trainer = cls(
            num_topics=topic_model.num_topics,
            alpha=topic_model.alpha,
            eta=topic_model.eta,
            iterations=max(topic_model.iterations, 1),
            random_state=topic_model.seed,
        )
        trainer.topic_model = topic_model

        info_path = load_path / MODEL_INFO_FILENAME
        if info_path.exists():
            with open(info_path, 'r', encoding='utf-8') as f:
                trainer.model_info = LDAModelInfo.model_validate(json.load(f))
            logger.info(f"Loaded model info from {info_path}")

        logger.info("Model loaded successfully")
        return trainer

    def print_topics(self, num_words: int = 10) -> None:
        """
        Print human-readable topic descriptions.

        Args:
            num_words: Number of top words to show per topic
        """
        if self.topic_model is None:
            raise ValueError("Model not trained or loaded")

        print(f"\nDiscovered Topics (n={self.num_topics}):")
        print("=" * 80)

        for topic_id in range(self.num_topics):
            top_words = self._top_words(self.topic_model, topic_id, num_words)
            words_str = ", ".join([f"{word}({weight:.3f})" for word, weight in top_words])

            print(f"\nTopic {topic_id}:")
            print(f"  {words_str}")

        print("\n" + "=" * 80)

    def topic_summary(self, num_words: int = 10) -> Dict[int, List[str]]:
        """Top words per topic (words only)."""
        if self.topic_model is None:
            raise ValueError("Model not trained or loaded")
        return {
            topic_id: [word for word, _ in self._top_words(self.topic_model, topic_id, num_words)]
            for topic_id in range(self.num_topics)
        }
