"""FAST foundation stages, seeds and the pipeline that drives them."""
