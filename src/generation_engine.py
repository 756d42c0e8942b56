"""Generation engine: the per-image control loop of a batch run.

Each iteration builds a randomized prompt, submits it to the remote service,
validates the returned payload and persists it. Failures are classified by
the RetryPolicy into retries, index reruns or an abort, and a cumulative
failure count acts as a circuit breaker for the whole run.
"""

import base64
import binascii
import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Protocol

from api_client import VeniceClient
from config import settings
from config_store import ConfigStore
from errors import ConfigError, PersistenceError, ValidationError, VeniceBatchError
from models import ElementPool, GenerationRequest, PromptConfig
from output_namer import resolve_image_path
from prompt_enhancer import EnhancedPrompt, enhance_prompt, enhancement_text
from rate_limiter import RateLimiter
from retry_policy import Action, Decision, RetryPolicy
from run_log import RunLog
from secure_random import random_item, sample_cfg_scale
from validation import validate_image

logger = logging.getLogger(__name__)

SEED_MODULUS = 99_999_999


@dataclass
class ProgressEvent:
    """Snapshot of run progress handed to presentation components."""

    current: int
    total: int
    status: str
    images_saved: int = 0
    failed_count: int = 0
    prompt: str = ""
    elements: str = ""
    explicit_elements: str = ""
    style_preset: str = ""
    model: str = ""
    cfg_scale: float = 0.0
    output_dir: str = ""
    toggles: dict[str, bool] = field(default_factory=dict)
    last_error: str = ""


class ProgressPublisher(Protocol):
    """Anything that can receive progress events."""

    def publish(self, event: ProgressEvent) -> None:
        """Receive one progress snapshot."""
        ...


class _NullPublisher:
    def publish(self, event: ProgressEvent) -> None:
        pass


class IterationOutcome(str, Enum):
    """Result of one pass through the iteration state machine."""
    SAVED = "saved"
    RETRY_SAME_INDEX = "retry_same_index"
    NEXT_INDEX = "next_index"
    ABORT = "abort"


class RunContext:
    """Mutable run counters, owned by the engine.

    The interrupted flag is the one field written from outside the engine
    (by a signal handler), so it is backed by a threading.Event.
    """

    def __init__(self):
        self.index = 0
        self.images_saved = 0
        self.failed_count = 0
        self.last_error = ""
        self.abort_reason: str | None = None
        self.breaker_tripped = False
        self._interrupted = threading.Event()

    def interrupt(self) -> None:
        """Request cancellation; observed at the next loop boundary."""
        self._interrupted.set()

    @property
    def interrupted(self) -> bool:
        return self._interrupted.is_set()


@dataclass
class RunResult:
    """Summary of a finished run."""

    images_saved: int
    failed_count: int
    iterations: int
    total: int
    interrupted: bool = False
    breaker_tripped: bool = False
    aborted: bool = False
    error: str | None = None
    output_dir: Path | None = None
    log_path: Path | None = None

    @property
    def success(self) -> bool:
        return not (self.aborted or self.breaker_tripped)


def make_seed(index: int, clock_ns: Callable[[], int] = time.time_ns) -> int:
    """Derive a per-attempt seed from wall-clock time and the iteration index."""
    return clock_ns() % SEED_MODULUS + index


class GenerationEngine:
    """Runs the generation loop for one batch."""

    def __init__(
        self,
        config: PromptConfig,
        pool: ElementPool,
        client: VeniceClient,
        run_log: RunLog,
        output_dir: Path,
        using_subdir: bool = False,
        config_store: ConfigStore | None = None,
        publisher: ProgressPublisher | None = None,
        policy: RetryPolicy | None = None,
        limiter: RateLimiter | None = None,
        context: RunContext | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock_ns: Callable[[], int] = time.time_ns,
        pin_count: bool = False,
    ):
        """Initialize the engine.

        Args:
            config: Configuration at startup
            pool: Element pool for prompt enhancement
            client: Remote service client
            run_log: Open run log for this run
            output_dir: Output directory resolved at startup
            using_subdir: Whether output_dir is a per-run subdirectory
            config_store: Store to hot-reload the configuration from (None disables reload)
            publisher: Receiver of progress events
            policy: Retry policy (defaults to the configured one)
            limiter: Rate limiter for remote calls
            context: Run context (pass one in to wire up cancellation)
            sleep: Blocking sleep used for backoff delays
            clock_ns: Nanosecond wall clock used to derive seeds
            pin_count: Keep the startup image count across reloads (set when
                the count was overridden on the command line)
        """
        self.config = config
        self.pool = pool
        self.client = client
        self.run_log = run_log
        self.output_dir = output_dir
        self.using_subdir = using_subdir
        self.config_store = config_store
        self.publisher = publisher or _NullPublisher()
        self.policy = policy or RetryPolicy()
        self.limiter = limiter or RateLimiter(self.policy.config.rate_limit_interval, sleep=sleep)
        self.context = context or RunContext()
        self._sleep = sleep
        self._clock_ns = clock_ns
        self.total = config.num_images
        self.pin_count = pin_count
        self._passes = 0
        # Reruns of the current index that did not count toward the breaker
        self._free_reruns = 0
        self._enhanced: EnhancedPrompt | None = None
        self._request: GenerationRequest | None = None

    def run(self) -> RunResult:
        """
        Generate up to the configured number of images.

        Returns:
            RunResult describing how the run ended
        """
        ctx = self.context
        logger.info(f"Starting run: {self.total} images into {self.output_dir}")

        while ctx.index < self.total:
            if self._should_stop():
                break

            outcome = self.run_iteration(ctx.index)
            if (outcome is IterationOutcome.RETRY_SAME_INDEX
                    and self._free_reruns >= self.policy.max_attempts):
                self._report_error(f"Giving up on image {ctx.index + 1} after {self._free_reruns} blank images")
                outcome = IterationOutcome.NEXT_INDEX

            if outcome in (IterationOutcome.SAVED, IterationOutcome.NEXT_INDEX):
                ctx.index += 1
                self._free_reruns = 0
            elif outcome is IterationOutcome.ABORT:
                break

        self.run_log.flush()

        if ctx.breaker_tripped:
            logger.error(f"Stopping after {ctx.failed_count} failed attempts")
        if ctx.interrupted:
            logger.warning("Run interrupted")

        self._publish("Finished")
        return RunResult(
            images_saved=ctx.images_saved,
            failed_count=ctx.failed_count,
            iterations=ctx.index,
            total=self.total,
            interrupted=ctx.interrupted,
            breaker_tripped=ctx.breaker_tripped,
            aborted=ctx.abort_reason is not None,
            error=ctx.abort_reason,
            output_dir=self.output_dir,
            log_path=self.run_log.path,
        )

    def run_iteration(self, index: int) -> IterationOutcome:
        """
        Run one pass of the state machine for the image at index.

        Args:
            index: 0-based image index

        Returns:
            The tagged outcome telling the loop whether to advance
        """
        self._maybe_reload()
        self._passes += 1

        style = ""
        if self.config.style and self.pool.style:
            style = random_item(self.pool.style)
        enhanced = enhance_prompt(self.config.prompt, self.config, self.pool)
        cfg_scale = sample_cfg_scale(self.config.min_config, self.config.max_config)
        self._enhanced, self._request = enhanced, None

        if len(enhanced.prompt) > settings.limits.max_prompt_length:
            self._report_error("Prompt too complex, consider simplifying")
            return IterationOutcome.NEXT_INDEX

        request = GenerationRequest(
            model=self.config.model,
            prompt=enhanced.prompt,
            width=self.config.width,
            height=self.config.height,
            steps=self.config.steps,
            cfg_scale=cfg_scale,
            negative_prompt=self.config.negative_prompt,
            seed=make_seed(index, self._clock_ns),
            style_preset=style,
        )
        self._request = request
        self._publish("Generating")

        max_attempts = self.policy.max_attempts
        for attempt in range(max_attempts):
            if self._should_stop():
                return IterationOutcome.ABORT
            if attempt > 0:
                logger.info(f"Retrying request (attempt {attempt + 1}/{max_attempts})...")
                # Every attempt gets its own seed
                request = request.model_copy(update={"seed": make_seed(index, self._clock_ns)})
                self._request = request
                self._publish(f"Retrying (attempt {attempt + 1}/{max_attempts})")

            self.limiter.wait()
            try:
                images = self.client.generate(request)
                outcome = self._store_images(index, images, request)
            except VeniceBatchError as e:
                decision = self.policy.classify(e)
                outcome = self._apply_decision(e, decision)

            if outcome is not None:
                return outcome

        logger.warning(f"Giving up on image {index + 1} after {max_attempts} attempts")
        return IterationOutcome.NEXT_INDEX

    def _apply_decision(self, error: Exception, decision: Decision) -> IterationOutcome | None:
        """Record a failure and translate the decision; None means try again."""
        if decision.counts_as_failure:
            self.context.failed_count += 1
        self._report_error(str(error))

        if decision.action is Action.ABORT_RUN:
            self.context.abort_reason = str(error)
            return IterationOutcome.ABORT
        if self._should_stop():
            return IterationOutcome.ABORT

        if decision.delay:
            self._sleep(decision.delay)

        if decision.action is Action.RETRY_INDEX:
            if not decision.counts_as_failure:
                self._free_reruns += 1
            return IterationOutcome.RETRY_SAME_INDEX
        if decision.action is Action.CONTINUE:
            return IterationOutcome.NEXT_INDEX
        return None

    def _store_images(
        self,
        index: int,
        images: list[str],
        request: GenerationRequest,
    ) -> IterationOutcome | None:
        """Decode, validate and persist each returned image.

        Returns:
            SAVED if at least one image was written, otherwise the outcome
            of the last failure (None if nothing was decodable)
        """
        saved = 0
        outcome = None

        for payload in images:
            try:
                data = base64.b64decode(payload, validate=True)
            except (binascii.Error, ValueError) as e:
                self._report_error(f"Error decoding image data: {e}")
                continue
            logger.debug(f"Decoded image ({len(data)} bytes)")

            try:
                validate_image(data)
                path = self._persist(index, data, request)
            except (ValidationError, PersistenceError) as e:
                outcome = self._apply_decision(e, self.policy.classify(e))
                continue

            saved += 1
            self.context.images_saved += 1
            self.context.last_error = ""
            self._publish(f"Saved {path.name}")

        if saved:
            return IterationOutcome.SAVED
        return outcome

    def _persist(self, index: int, data: bytes, request: GenerationRequest) -> Path:
        """Write one image and its log entry.

        Raises:
            PersistenceError: If the image cannot be written
        """
        path = resolve_image_path(
            self.output_dir,
            self.config.prompt_name,
            self.using_subdir,
            index,
            request.seed,
            request.cfg_scale,
        )
        try:
            path.write_bytes(data)
        except OSError as e:
            raise PersistenceError(f"Error saving image: {e}") from e
        logger.debug(f"Image saved: {path}")

        try:
            self.run_log.record_image(
                path.name,
                style_preset=request.style_preset,
                elements=enhancement_text(request.prompt, self.config.prompt),
            )
        except PersistenceError as e:
            logger.error(f"Image {path.name} saved but not logged: {e}")
        return path

    def _maybe_reload(self) -> None:
        """Hot-reload the configuration before every pass after the first."""
        if self.config_store is None or self._passes == 0:
            return
        try:
            fresh = self.config_store.reload_config(self.config)
        except ConfigError as e:
            self._report_error(f"Error parsing updated config: {e}")
            return
        if self.pin_count:
            fresh = fresh.model_copy(update={"num_images": self.total})
        elif fresh.num_images != self.total:
            logger.info(f"Image count changed from {self.total} to {fresh.num_images}")
            self.total = fresh.num_images

        if fresh.api_key != self.config.api_key:
            logger.info("API key changed, using the new key for further requests")
            self.client.set_api_key(fresh.api_key)
        self.config = fresh

    def _should_stop(self) -> bool:
        ctx = self.context
        if self.policy.breaker_tripped(ctx.failed_count):
            ctx.breaker_tripped = True
        return ctx.interrupted or ctx.breaker_tripped

    def _report_error(self, message: str) -> None:
        """Surface a non-fatal error to the log, the run log and observers."""
        self.context.last_error = message
        logger.warning(message)
        try:
            self.run_log.record_error(message)
        except PersistenceError as e:
            logger.error(f"Could not write error to run log: {e}")
        self._publish("Error")

    def _publish(self, status: str) -> None:
        """Send a snapshot of the current state to the publisher."""
        event = ProgressEvent(
            current=self.context.index,
            total=self.total,
            status=status,
            images_saved=self.context.images_saved,
            failed_count=self.context.failed_count,
            model=self.config.model,
            output_dir=str(self.output_dir),
            toggles=self.config.toggles(),
            last_error=self.context.last_error,
        )
        if self._enhanced is not None:
            event.prompt = self._enhanced.prompt
            event.elements = self._enhanced.elements
            event.explicit_elements = self._enhanced.explicit_elements
        if self._request is not None:
            event.style_preset = self._request.style_preset
            event.cfg_scale = self._request.cfg_scale
        self.publisher.publish(event)
