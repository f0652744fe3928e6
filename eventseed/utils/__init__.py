"""Id helpers shared by synthesis and the loaders."""
