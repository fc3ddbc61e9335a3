"""Keep each student's GPA in step with their enrollments."""
from __future__ import annotations

import logging

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from academics.models import Enrollment
from academics.services import recompute_gpa

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Enrollment)
def recompute_gpa_on_save(sender, instance: Enrollment, created: bool, raw: bool = False, **kwargs):
    if raw:
        return
    gpa = recompute_gpa(instance.student_id)
    logger.debug("GPA for student %s is now %s", instance.student_id, gpa)


@receiver(post_delete, sender=Enrollment)
def recompute_gpa_on_delete(sender, instance: Enrollment, **kwargs):
    gpa = recompute_gpa(instance.student_id)
    logger.debug("GPA for student %s is now %s after removing an enrollment", instance.student_id, gpa)
