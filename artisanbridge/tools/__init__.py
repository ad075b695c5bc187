"""Developer tools shipped with the Artisan bridge."""
