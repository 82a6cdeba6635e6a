"""
Folder model — equipment grouping.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Folder(models.Model):
    """
    Category an equipment line is filed under (e.g. Sound → Speakers).

    One level of nesting via parent is enough for the planner's
    main-folder/sub-folder grouping.
    """

    name = models.CharField(
        max_length=100,
        verbose_name=_('Name'),
    )
    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='children',
        verbose_name=_('Parent folder'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Folder')
        verbose_name_plural = _('Folders')
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(
                fields=['parent', 'name'],
                name='unique_folder_name_per_parent',
            ),
        ]

    def __str__(self) -> str:
        if self.parent_id:
            return f"{self.parent} / {self.name}"
        return self.name
