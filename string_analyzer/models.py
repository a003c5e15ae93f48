from django.db import models


class StringRecord(models.Model):
    """
    An analyzed string, stored once and addressed by the SHA-256 of its value.
    """
    id = models.CharField(
        primary_key=True, max_length=64, editable=False)  # sha256 hex length = 64
    value = models.TextField(unique=True)
    length = models.PositiveIntegerField(db_index=True)
    is_palindrome = models.BooleanField(db_index=True)
    unique_characters = models.PositiveIntegerField()
    word_count = models.PositiveIntegerField(db_index=True)
    character_frequency_map = models.JSONField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'strings'
        ordering = ['-created_at', 'id']
        verbose_name = 'String Record'
        verbose_name_plural = 'String Records'

    def __str__(self):
        return f"{self.value[:50]} - {self.id[:12]}"

    @property
    def sha256_hash(self):
        return self.id

    @property
    def properties(self):
        return {
            'length': self.length,
            'is_palindrome': self.is_palindrome,
            'unique_characters': self.unique_characters,
            'word_count': self.word_count,
            'sha256_hash': self.sha256_hash,
            'character_frequency_map': self.character_frequency_map,
        }
