"""In-memory implementation of every repository port.

Entities are deep-copied on the way in and out, so callers never share
mutable state with the store (the same guarantee a database gives).
"""

from __future__ import annotations

import asyncio
import copy
from typing import Dict, List, Optional, TypeVar

from resume_tailor.domain import Bullet, Experience, Resume, ResumeStatus, Skill, User
from resume_tailor.domain.value_objects import mentions_term, normalize_terms

from .ports import ListOptions

T = TypeVar("T")


def _copy(value: T) -> T:
    return copy.deepcopy(value)


class InMemoryStore:
    """Dict-backed store for users, experiences, bullets, skills and resumes."""

    def __init__(self) -> None:
        self._users: Dict[str, User] = {}
        self._experiences: Dict[str, Experience] = {}
        self._bullets: Dict[str, Bullet] = {}
        self._skills: Dict[str, Skill] = {}
        self._resumes: Dict[str, Resume] = {}
        self._lock = asyncio.Lock()

    # -- users ---------------------------------------------------------------

    async def create_user(self, user: User) -> None:
        async with self._lock:
            self._users[user.id] = _copy(user)

    async def get_user(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return _copy(user) if user else None

    async def update_user(self, user: User) -> None:
        await self.create_user(user)

    # -- experiences ---------------------------------------------------------

    async def create_experience(self, experience: Experience) -> None:
        async with self._lock:
            stored = _copy(experience)
            # Bullets live in their own table; keep the experience row flat.
            stored.bullets = []
            self._experiences[experience.id] = stored
            for bullet in experience.bullets:
                self._bullets[bullet.id] = _copy(bullet)

    async def get_experience(self, experience_id: str) -> Optional[Experience]:
        experience = self._experiences.get(experience_id)
        if experience is None:
            return None
        result = _copy(experience)
        result.bullets = await self.list_bullets_by_experience(experience_id)
        return result

    async def list_experiences(self, user_id: str) -> List[Experience]:
        items = [e for e in self._experiences.values() if e.user_id == user_id]
        return [_copy(e) for e in sorted(items, key=lambda e: e.sort_key())]

    async def update_experience(self, experience: Experience) -> None:
        async with self._lock:
            stored = _copy(experience)
            stored.bullets = []
            self._experiences[experience.id] = stored

    async def delete_experience(self, experience_id: str) -> bool:
        async with self._lock:
            if self._experiences.pop(experience_id, None) is None:
                return False
            for bullet_id in [b.id for b in self._bullets.values() if b.experience_id == experience_id]:
                del self._bullets[bullet_id]
            return True

    # -- bullets -------------------------------------------------------------

    async def create_bullet(self, bullet: Bullet) -> None:
        async with self._lock:
            self._bullets[bullet.id] = _copy(bullet)

    async def get_bullet(self, bullet_id: str) -> Optional[Bullet]:
        bullet = self._bullets.get(bullet_id)
        return _copy(bullet) if bullet else None

    async def list_bullets_by_experience(self, experience_id: str) -> List[Bullet]:
        items = [b for b in self._bullets.values() if b.experience_id == experience_id]
        return [_copy(b) for b in sorted(items, key=lambda b: b.display_order)]

    async def list_bullets_by_ids(self, bullet_ids: List[str]) -> List[Bullet]:
        return [_copy(self._bullets[i]) for i in bullet_ids if i in self._bullets]

    async def list_bullets_by_user(self, user_id: str) -> List[Bullet]:
        owned = {e.id for e in self._experiences.values() if e.user_id == user_id}
        items = [b for b in self._bullets.values() if b.experience_id in owned]
        return [_copy(b) for b in items]

    async def search_bullets(self, user_id: str, keywords: List[str]) -> List[Bullet]:
        """Bullets tagged with, or mentioning, any of *keywords*; strongest first."""
        terms = normalize_terms(keywords)
        bullets = await self.list_bullets_by_user(user_id)
        if not terms:
            return bullets
        hits = [
            b for b in bullets if any(b.has_keyword(t) or mentions_term(b.content, t) for t in terms)
        ]
        return sorted(hits, key=lambda b: -b.impact_score.value)

    async def list_high_impact_bullets(self, user_id: str, min_score: int, limit: int) -> List[Bullet]:
        bullets = await self.list_bullets_by_user(user_id)
        strong = [b for b in bullets if b.impact_score.value >= min_score]
        return sorted(strong, key=lambda b: -b.impact_score.value)[:limit]

    async def update_bullet(self, bullet: Bullet) -> None:
        await self.create_bullet(bullet)

    async def delete_bullet(self, bullet_id: str) -> bool:
        async with self._lock:
            return self._bullets.pop(bullet_id, None) is not None

    # -- skills --------------------------------------------------------------

    async def create_skill(self, skill: Skill) -> None:
        async with self._lock:
            self._skills[skill.id] = _copy(skill)

    async def list_skills(self, user_id: str) -> List[Skill]:
        items = [s for s in self._skills.values() if s.user_id == user_id]
        return [_copy(s) for s in sorted(items, key=lambda s: s.display_order)]

    async def update_skill(self, skill: Skill) -> None:
        await self.create_skill(skill)

    async def delete_skill(self, skill_id: str) -> bool:
        async with self._lock:
            return self._skills.pop(skill_id, None) is not None

    # -- resumes -------------------------------------------------------------

    async def create_resume(self, resume: Resume) -> None:
        async with self._lock:
            self._resumes[resume.id] = _copy(resume)

    async def get_resume(self, resume_id: str) -> Optional[Resume]:
        resume = self._resumes.get(resume_id)
        return _copy(resume) if resume else None

    async def list_resumes(
        self,
        user_id: str,
        status: Optional[ResumeStatus] = None,
        options: Optional[ListOptions] = None,
    ) -> List[Resume]:
        options = options or ListOptions()
        items = [
            r
            for r in self._resumes.values()
            if r.user_id == user_id and (status is None or r.status is status)
        ]
        items.sort(key=lambda r: r.created_at, reverse=True)
        window = items[options.offset : options.offset + options.limit]
        return [_copy(r) for r in window]

    async def update_resume(self, resume: Resume) -> None:
        await self.create_resume(resume)

    async def delete_resume(self, resume_id: str) -> bool:
        async with self._lock:
            return self._resumes.pop(resume_id, None) is not None
