"""
Animation Manager

Advances a shared clock and dispatches sampled values of all registered
animations.
"""

import logging
from typing import Callable, Iterable, List, Optional, Tuple

from ..config.settings import load_animation_settings
from ..loaders.gltf_document import GltfDocument
from .animation import AnimationUnit
from .channel_resolver import log_diagnostics, resolve_document
from .interpolation import PlaybackPolicy, sample
from .write_back import WriteBack, node_writer

logger = logging.getLogger(__name__)


class ManagedAnimation:
    """
    An animation unit registered with an AnimationManager.

    Instances are returned by AnimationManager.add_animation and serve as
    handles for removal.
    """

    def __init__(self, unit: AnimationUnit, callback: WriteBack):
        self.unit = unit
        self.callback = callback

    def __repr__(self):
        return f"ManagedAnimation(unit={self.unit!r})"


class AnimationManager:
    """
    Plays back a set of animations against one clock.

    Manages:
    - Registration order of animations
    - Current playback time
    - Dispatching sampled values to write-back callbacks

    Animations sharing a target are all applied each tick in registration
    order, so the last registered one determines the final value. Pausing
    is done by not calling tick().
    """

    def __init__(self, policy: PlaybackPolicy = PlaybackPolicy.LOOP):
        """
        Initialize animation manager.

        Args:
            policy: Behavior for times outside an animation's key range
        """
        self.policy = policy
        self.current_time: float = 0.0
        self._animations: List[ManagedAnimation] = []

    @property
    def animations(self) -> Tuple[ManagedAnimation, ...]:
        return tuple(self._animations)

    @property
    def duration(self) -> float:
        """Largest end key time over all managed animations."""
        if not self._animations:
            return 0.0
        return max(managed.unit.end_time for managed in self._animations)

    @property
    def finished(self) -> bool:
        """Whether a ONCE playback has reached the end of all animations."""
        return self.policy is PlaybackPolicy.ONCE and self.current_time >= self.duration

    def __len__(self):
        return len(self._animations)

    def add_animation(self, unit: AnimationUnit, callback: WriteBack) -> ManagedAnimation:
        """Register an animation; it is applied after all earlier ones."""
        managed = ManagedAnimation(unit, callback)
        self._animations.append(managed)
        logger.debug("Added %r", managed)
        return managed

    def add_animations(
        self,
        animations: Iterable[Tuple[AnimationUnit, WriteBack]]
    ) -> List[ManagedAnimation]:
        """
        Register several animations.

        Args:
            animations: (unit, callback) pairs

        Returns:
            Handles in the given order
        """
        return [self.add_animation(unit, callback) for unit, callback in animations]

    def _is_registered(self, handle: ManagedAnimation) -> bool:
        return any(managed is handle for managed in self._animations)

    def remove(self, handle: ManagedAnimation):
        """
        Unregister an animation.

        Raises:
            KeyError: If the handle is not registered with this manager
        """
        for i, managed in enumerate(self._animations):
            if managed is handle:
                del self._animations[i]
                logger.debug("Removed %r", handle)
                return
        raise KeyError(f"Animation is not managed by this manager: {handle!r}")

    def remove_all(self):
        self._animations.clear()

    def reset(self):
        """Rewind the clock to zero."""
        self.current_time = 0.0

    def tick(self, delta_time: float):
        """
        Advance the clock and apply all animations.

        Args:
            delta_time: Time elapsed since the last tick (seconds)

        Raises:
            ValueError: If delta_time is negative
        """
        if delta_time < 0.0:
            raise ValueError(f"delta_time must not be negative, got {delta_time}")

        self.current_time += delta_time
        if self.policy is PlaybackPolicy.ONCE:
            self.current_time = min(self.current_time, self.duration)

        # Snapshot so animations registered by a callback wait for the next
        # tick; ones removed by a callback are skipped right away
        for managed in tuple(self._animations):
            if not self._is_registered(managed):
                continue
            value = sample(managed.unit, self.current_time, self.policy)
            managed.callback(self.current_time, value)

    def __repr__(self):
        return (
            f"AnimationManager(policy={self.policy.value}, time={self.current_time:.2f}s, "
            f"animations={len(self._animations)})"
        )


def create_animation_manager(
    document: Optional[GltfDocument] = None,
    policy: Optional[PlaybackPolicy] = None,
    writer_factory: Callable = node_writer
) -> AnimationManager:
    """
    Create an AnimationManager holding all animations of a document.

    Channels that cannot be resolved are logged and skipped.

    Args:
        document: Document to read animations from (None for an empty manager)
        policy: Playback policy (defaults to the configured policy)
        writer_factory: Builds the write-back callback from (node, target)

    Returns:
        AnimationManager with one animation per resolved channel
    """
    if policy is None:
        policy = PlaybackPolicy(load_animation_settings()["playback_policy"])

    manager = AnimationManager(policy)
    if document is None:
        return manager

    result = resolve_document(document)
    log_diagnostics(result.diagnostics, logger)

    manager.add_animations(
        (unit, writer_factory(document.get_node(unit.target.node), unit.target))
        for unit in result.units
    )
    return manager
